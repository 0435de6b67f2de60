"""This module contains the schemas for serialization/deserialization
of various models."""

from .block import *
from .settings import *
from .tag import *
