from sqlalchemy.orm import declarative_base

# Shared declarative base for all SQLAlchemy models
Base = declarative_base()
