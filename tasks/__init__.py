"""tasks/ -- Task records: domain dataclass and persistence.

Layer rule: tasks/ does not import from api/ or auth/.
"""
