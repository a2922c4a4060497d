from models.db_storage import DBStorage

# Engine and tables are set up by api.create_app() via storage.reload()
storage = DBStorage()
