"""Student Attendance package.

Feature modules (students, attendance, users, reports, teams) each carry a
repository interface, a MySQL repository, a service and a thin Flask
controller that speaks JSON.
"""
