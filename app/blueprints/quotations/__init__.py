from flask import Blueprint

quotations_bp = Blueprint('quotations', __name__)

from app.blueprints.quotations import routes  # noqa: E402, F401
