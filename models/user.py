from models.base_model import Base, BaseModel
from models.session_set import SessionSet
from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

ROLES = ("user", "admin")


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(512), nullable=True)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    # Raw storage for SessionSet; go through `sessions` instead
    refresh_tokens = Column(JSON, nullable=False, default=lambda: [])
    # Every UPDATE is conditional on this counter (optimistic concurrency)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def sessions(self) -> SessionSet:
        return SessionSet(self.refresh_tokens or ())

    @sessions.setter
    def sessions(self, value: SessionSet):
        # Assign a fresh list so the JSON column is flagged dirty
        self.refresh_tokens = list(value)

    def __repr__(self):
        return f"<User {self.username} role={self.role}>"
