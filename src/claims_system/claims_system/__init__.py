"""Lecturer Claims System package.

This package is organized by feature modules (claims, users, roles, reports)
with a thin Flask controller layer and service/repository layers underneath.
"""
