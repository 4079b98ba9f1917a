from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_mail import Mail


# Keep instances usable after commit: services hand prospects back to callers
# (CLI, tests) after the transaction boundary.
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
mail = Mail()
