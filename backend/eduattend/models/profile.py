"""Profile model for students and class representatives."""
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash
from eduattend import db
from eduattend.models.base import BaseModel

class Profile(BaseModel):
    """Identity record for every user of the system.

    ``is_hoc`` marks a class representative (issuer). It is fixed when the
    profile is created; there is no in-app promotion.
    """

    __tablename__ = 'profiles'

    matric_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    # Academic partition
    department = db.Column(db.String(100), nullable=False, index=True)
    level = db.Column(db.String(50), nullable=False)

    # Role
    is_hoc = db.Column(db.Boolean, default=False, nullable=False)

    # Opaque reference into the signature store
    signature_ref = db.Column(db.String(255), nullable=True)

    @validates('is_hoc')
    def validate_is_hoc(self, key, value):
        current = self.is_hoc if self.id is not None else None
        if current is not None and bool(current) != bool(value):
            raise ValueError("Role cannot be changed after registration")
        return bool(value)

    def set_password(self, password: str) -> None:
        """Set password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches."""
        return check_password_hash(self.password_hash, password)

    @property
    def has_signature(self) -> bool:
        return bool(self.signature_ref)

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        default_exclude = ['password_hash']
        exclude = (exclude or []) + default_exclude
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<Profile {self.matric_number}>'
