"""HR time-keeping backend.

This package is organized by feature modules (employees, faces, attendance)
with a thin Flask controller layer over service/repository layers.
"""
