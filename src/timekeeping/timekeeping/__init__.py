"""Timekeeping engine package.

Feature modules (punches, workdays, shifts, schedules, employees) follow the
same layering: model, repository interface, MySQL repository, service and a
thin Flask controller.
"""
