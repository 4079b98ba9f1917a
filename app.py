"""Flask entrypoint.

The application factory lives in `eprofos.create_app`. This thin wrapper lets
the Flask CLI find the app, e.g.:

  flask --app app db upgrade
  flask --app app prospects consolidate
"""

from eprofos import create_app


app = create_app()
