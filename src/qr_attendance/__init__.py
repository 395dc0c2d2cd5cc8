"""QR attendance service.

Organized by feature modules (student_ids, sessions, attendance, users, ...)
with a thin Flask controller layer over service/repository layers.
"""
