"""
Flask blueprints for the label review API.
"""

from flask import Blueprint

# Create blueprints
history_bp = Blueprint('history', __name__)
review_bp = Blueprint('review', __name__)
# Import routes to register them
from . import helpers  # noqa: E402, F401
from . import history  # noqa: E402, F401
from . import review  # noqa: E402, F401
