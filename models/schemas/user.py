import re

from marshmallow import EXCLUDE, Schema, fields, pre_load, validate, validates, ValidationError

from models.user import ROLES

PASSWORD_MIN_LENGTH = 6
_PASSWORD_CLASSES = (r"[a-z]", r"[A-Z]", r"[0-9]", r"[!@#$%^&*]")
PASSWORD_RULES_MESSAGE = (
    "Password must contain at least one lowercase letter, one uppercase letter, "
    "one number, and one special character"
)


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def check_password_strength(value):
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    if not all(re.search(pattern, value) for pattern in _PASSWORD_CLASSES):
        raise ValidationError(PASSWORD_RULES_MESSAGE)


class UserRegisterSchema(Schema):
    class Meta:
        # `role` and other extras are dropped: registration always yields a plain user
        unknown = EXCLUDE

    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=3, max=30),
            validate.Regexp(r"^[A-Za-z0-9]+$", error="Username must be alphanumeric."),
        ],
    )
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    first_name = fields.String(required=True, validate=validate.Length(min=2, max=50))
    last_name = fields.String(required=True, validate=validate.Length(min=2, max=50))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if isinstance(data.get("username"), str):
                data["username"] = data["username"].strip()
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        check_password_strength(value)


class UserLoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class ProfileUpdateSchema(Schema):
    class Meta:
        # Only the profile fields below may be changed through this schema
        unknown = EXCLUDE

    first_name = fields.String(validate=validate.Length(min=2, max=50))
    last_name = fields.String(validate=validate.Length(min=2, max=50))
    bio = fields.String(allow_none=True, validate=validate.Length(max=500))
    avatar = fields.Url(allow_none=True)


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        check_password_strength(value)


class RoleUpdateSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLES))


class UserOutSchema(Schema):
    """Public projection: no password hash, no refresh tokens, no version."""
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    role = fields.String()
    is_active = fields.Boolean()
    email_verified = fields.Boolean()
    last_login = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
