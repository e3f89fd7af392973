"""
Demo mode: an in-memory stand-in for the database-backed API, seeded with
sample projects and wiped on a timer.
"""
