"""
Authentication module for the hospital management system.

This module provides authentication and authorization functionality including:
- Account registration and login
- JWT access and refresh tokens
- Role-based access control dependencies
- Administrative account management
"""
