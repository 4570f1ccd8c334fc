from moneyflow.db.base import Base
from moneyflow.db.session import engine
from moneyflow.db import models  # noqa: F401  # Imported for side effects

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created.")
