from . import models
from .models import *  # noqa: F401,F403

__all__ = ["models", *models.__all__]
