# File: voxredact/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. Project, Recording and ApiKey models inherit from this.
Base = declarative_base()
