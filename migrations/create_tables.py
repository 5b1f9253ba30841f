"""Creates the EventSync schema on the configured DATABASE_URL without running migrations."""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, db


def create_tables():
    app = create_app()
    with app.app_context():
        db.create_all()
        for name, table in sorted(db.metadata.tables.items()):
            app.logger.info(f"{name}: {len(table.columns)} columns")
        app.logger.info(f"EventSync schema ready on {db.engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    create_tables()
