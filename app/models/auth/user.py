from sqlalchemy import Column, String, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import Role

class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(SQLEnum(Role, name="role"), nullable=False, default=Role.EMPLOYEE)

    def __repr__(self):
        return f"<User {self.email}>"
