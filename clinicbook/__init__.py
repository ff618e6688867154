"""
Clinicbook

A FastAPI-based appointment booking service for patients and medical
practitioners, with token authentication, role-based access control and
clinical record keeping.
"""

__version__ = "1.0.0"
