"""QR attendance package.

Organized by feature modules (sessions, tokens, attendance, audit, ...)
with a thin Flask controller layer over service/repository layers.
"""
