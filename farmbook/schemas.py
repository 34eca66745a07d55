"""Request payload schemas.

Payloads arrive in camelCase; ``model_dump()`` yields the snake_case column
names used by the models.
"""
import datetime as dt
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PaymentMethod = Literal['cash', 'credit', 'bank', 'other']
ExpenseStatus = Literal['pending', 'completed', 'cancelled']
IncomeStatus = Literal['pending', 'received', 'cancelled']
Season = Literal['spring', 'summer', 'fall', 'winter', 'other']
FeedbackCategory = Literal['Bug Report', 'Feature Request', 'General Feedback', 'Support']
FeedbackStatus = Literal['New', 'In Review', 'Resolved']
SettingCategory = Literal['system', 'appearance', 'finance', 'notification', 'user']

USERNAME_PATTERN = r'^[a-zA-Z0-9_]+$'
EMAIL_PATTERN = r'^\S+@\S+\.\S+$'


def parse_date(value):
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp and keep the calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in 'T ':
        return value[:10]
    return value


IsoDate = Annotated[dt.date, BeforeValidator(parse_date)]


class Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )


# ---------------------- Auth / Users ----------------------
class RegisterIn(Schema):
    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6)

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class LoginIn(Schema):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class LocationIn(Schema):
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None


class NotificationsIn(Schema):
    email: Optional[bool] = None
    app: Optional[bool] = None


class PreferencesIn(Schema):
    currency: Optional[str] = None
    theme: Optional[Literal['light', 'dark', 'system']] = None
    language: Optional[Literal['en', 'hi', 'gu']] = None
    date_format: Optional[str] = None
    notifications: Optional[NotificationsIn] = None


class FarmSizeIn(Schema):
    value: Optional[float] = Field(default=None, ge=0)
    unit: Optional[Literal['acres', 'hectares']] = None


class FarmDetailsIn(Schema):
    name: Optional[str] = None
    location: Optional[str] = None
    size: Optional[FarmSizeIn] = None
    primary_crops: Optional[List[str]] = None
    farming_type: Optional[Literal['Organic', 'Conventional', 'Mixed']] = None
    farm_type: Optional[List[str]] = None


class ProfileUpdate(Schema):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    profile_picture: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[LocationIn] = None
    preferences: Optional[PreferencesIn] = None
    farm_details: Optional[FarmDetailsIn] = None

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower() if value else value

    def column_updates(self):
        """Supplied fields keyed by column name; nested dicts stay camelCase as stored."""
        data = self.model_dump(exclude_unset=True, exclude_none=True, by_alias=True)
        return {name: data[field.alias] for name, field in type(self).model_fields.items()
                if field.alias in data}


class AdminUserUpdate(ProfileUpdate):
    role: Optional[Literal['user', 'admin']] = None
    is_active: Optional[bool] = None


# ---------------------- Transactions ----------------------
class ExpenseIn(Schema):
    category: str = Field(min_length=2, max_length=50)
    amount: float = Field(gt=0)
    date: IsoDate = Field(default_factory=dt.date.today)
    note: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = 'cash'
    is_recurring: bool = False
    tags: List[str] = Field(default_factory=list)
    receipt_image: str = ''
    status: ExpenseStatus = 'completed'


class ExpenseUpdate(Schema):
    category: Optional[str] = Field(default=None, min_length=2, max_length=50)
    amount: Optional[float] = Field(default=None, gt=0)
    date: Optional[IsoDate] = None
    note: Optional[str] = Field(default=None, max_length=500)
    payment_method: Optional[PaymentMethod] = None
    is_recurring: Optional[bool] = None
    tags: Optional[List[str]] = None
    receipt_image: Optional[str] = None
    status: Optional[ExpenseStatus] = None


class ExpenseStatusIn(Schema):
    status: ExpenseStatus


class IncomeIn(Schema):
    product: str = Field(min_length=2, max_length=50)
    quantity: float = Field(ge=0)
    rate_per_unit: float = Field(ge=0)
    total_amount: Optional[float] = Field(default=None, ge=0)
    is_manual_total: bool = False
    date: IsoDate = Field(default_factory=dt.date.today)
    note: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = 'cash'
    buyer: Optional[str] = Field(default=None, max_length=100)
    is_regular_income: bool = False
    tags: List[str] = Field(default_factory=list)
    invoice_number: Optional[str] = None
    status: IncomeStatus = 'received'
    season: Season = 'other'


class IncomeUpdate(Schema):
    product: Optional[str] = Field(default=None, min_length=2, max_length=50)
    quantity: Optional[float] = Field(default=None, ge=0)
    rate_per_unit: Optional[float] = Field(default=None, ge=0)
    total_amount: Optional[float] = Field(default=None, ge=0)
    is_manual_total: Optional[bool] = None
    date: Optional[IsoDate] = None
    note: Optional[str] = Field(default=None, max_length=500)
    payment_method: Optional[PaymentMethod] = None
    buyer: Optional[str] = Field(default=None, max_length=100)
    is_regular_income: Optional[bool] = None
    tags: Optional[List[str]] = None
    invoice_number: Optional[str] = None
    status: Optional[IncomeStatus] = None
    season: Optional[Season] = None


# ---------------------- Feedback / Settings ----------------------
class FeedbackIn(Schema):
    message: str = Field(min_length=1, max_length=500)
    category: FeedbackCategory = 'General Feedback'


class FeedbackStatusIn(Schema):
    status: FeedbackStatus
    response: Optional[str] = Field(default=None, max_length=1000)


class SettingIn(Schema):
    key: str = Field(min_length=1, max_length=100)
    value: Any
    description: Optional[str] = None
    category: Optional[SettingCategory] = None
    is_public: Optional[bool] = None


class SettingsUpdate(Schema):
    settings: List[SettingIn]
