"""Site workforce core package.

Feature modules (geofence, attendance, overtime, tasks) each carry a model,
a repository Protocol with a MySQL implementation, a service layer and a thin
Flask controller.
"""
