"""
Wire topology engine.

Modules are imported bare (models, controllers, simulation, routing) with
app/ on sys.path; see pyproject.toml.
"""
