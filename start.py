#!/usr/bin/env python3
"""Development server for the EventSync API.

Tables are created on boot so a fresh SQLite file is usable straight away;
deployed databases are managed with ``flask db upgrade``.
"""
import os
from dotenv import load_dotenv
from app import create_app, db

load_dotenv()

app = create_app()

with app.app_context():
    db.create_all()
    app.logger.info(f"EventSync tables ready: {', '.join(sorted(db.metadata.tables))}")

if __name__ == "__main__":
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 5001)),
        debug=os.environ.get("FLASK_DEBUG") == "1",
        # The SSE stream holds a worker for each open client
        threaded=True,
    )
