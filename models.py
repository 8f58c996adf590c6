from peewee import *
import datetime

from config import Config

# Connect to SQLite database
database = SqliteDatabase(Config.DATABASE_PATH)

class BaseModel(Model):
    class Meta:
        database = database

class ForecastCache(BaseModel):
    # e.g. source='surfline-tides', key='5842041f4e65fad6a7708976:3'
    source = CharField()
    key = CharField()
    payload = TextField()
    last_updated = DateTimeField(default=datetime.datetime.now)

    class Meta:
        indexes = (
            (('source', 'key'), True),
        )

def init_db():
    database.connect(reuse_if_open=True)
    database.create_tables([ForecastCache])
