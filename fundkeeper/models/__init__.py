# fundkeeper/models/__init__.py

"""
Centralizes model imports so Base.metadata knows every table as soon as
fundkeeper.models is imported.
"""

from fundkeeper.database import Base

from .user import User
