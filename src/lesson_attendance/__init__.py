"""Lesson attendance package.

Organized by feature modules (academics, users, lessons, attendance, ...)
with a thin Flask controller layer over service/repository layers.
"""
