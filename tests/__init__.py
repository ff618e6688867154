"""
Test suite for the clinicbook appointment API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
