# File: app/db/base.py
# Project: citycare-backend

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
