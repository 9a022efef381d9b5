"""Database models for the authz_permission application."""

from authz_permission.models.engine import *
