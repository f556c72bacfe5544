from sqlalchemy import BigInteger, Integer

# BigInteger primary keys, with a SQLite-safe Integer variant so autoincrement works.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")
