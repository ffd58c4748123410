"""Course attendance backend.

This package is organized by feature modules (courses, students, enrollments,
users, attendance, reports) with a thin Flask controller layer over
service/repository layers backed by MongoDB or an in-memory store.
"""
