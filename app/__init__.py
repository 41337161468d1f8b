"""
                Restaurant Management API

Backend for restaurant owners: registration with email verification,
JWT sessions, account management and order tracking.

Author: Khalil_Bannouri
Version: 3.0.0
License: MIT
"""

__version__ = "3.0.0"
__author__ = "Khalil_Bannouri"
