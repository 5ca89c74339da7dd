import logging

from flask import current_app
from pymongo import MongoClient

from settleup.store.mongo_store import MongoLedgerStore

logger = logging.getLogger(__name__)

STORE_KEY = "ledger_store"


def init_mongo(app):
    mongo_uri = app.config["MONGO_URI"]
    client = MongoClient(mongo_uri, tz_aware=False)

    # get_default_database() extracts DB name from URI (e.g., /settleup)
    # If the URI has none, use the configured name
    db = client.get_default_database(default=app.config["MONGO_DB_NAME"])

    logger.info("[MongoDB] Connected to database: %s", db.name)
    return db


def init_store(app, store=None):
    """Attach the ledger store to the app; defaults to Mongo."""
    if store is None:
        db = init_mongo(app)
        store = MongoLedgerStore(db, snapshot_reads=app.config.get("MONGO_SNAPSHOT_READS", False))
    app.extensions[STORE_KEY] = store
    return store


def get_store():
    """Get the ledger store of the current app. Must be called after init_store."""
    store = current_app.extensions.get(STORE_KEY)
    if store is None:
        raise RuntimeError("Ledger store not initialized. Call init_store first.")
    return store

