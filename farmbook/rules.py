"""Write-time business rules for records.

Each rule is a plain function that the views call right before a record is
added to the session, so the transformation is visible at the call site.
"""


def _iso(value):
    return value.isoformat() if value else None


def computed_total(quantity, rate_per_unit):
    return (quantity or 0) * (rate_per_unit or 0)


def income_totals(quantity, rate_per_unit, total_amount=None, is_manual_total=False, changed=()):
    """Return ``(total_amount, is_manual_total, commission_amount)``.

    ``changed`` holds the field names the caller supplied in this write
    (``quantity``, ``rate_per_unit``, ``total_amount``, ``is_manual_total``).
    A supplied total that differs from quantity x rate becomes a manual total
    and is no longer recomputed; a supplied total equal to it stays automatic.
    """
    computed = computed_total(quantity, rate_per_unit)
    is_manual = bool(is_manual_total)
    if 'total_amount' in changed and total_amount is not None:
        is_manual = total_amount != computed
    if total_amount is None:
        is_manual = False

    if not is_manual:
        total_amount = computed

    commission = 0.0
    if is_manual and total_amount < computed:
        commission = computed - total_amount
    return total_amount, is_manual, commission


def apply_income_totals(income, changed=()):
    """Recompute the derived amount fields of ``income`` in place."""
    income.total_amount, income.is_manual_total, income.commission_amount = income_totals(
        income.quantity,
        income.rate_per_unit,
        income.total_amount,
        income.is_manual_total,
        changed,
    )
    return income


def normalize_tags(tags):
    """Lowercase, trim and de-duplicate tags, keeping first-seen order."""
    seen = []
    for tag in tags or []:
        tag = str(tag).strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def sync_feedback_resolution(feedback):
    feedback.is_resolved = feedback.status == 'Resolved'
    return feedback


def safe_user(user):
    """Public projection of a user, never carrying the password hash."""
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'profilePicture': user.profile_picture,
        'role': user.role,
        'isActive': user.is_active,
        'lastLogin': _iso(user.last_login),
        'createdAt': _iso(user.created_at),
        'preferences': user.preferences,
        'phoneNumber': user.phone_number,
        'location': user.location,
        'farmDetails': user.farm_details,
    }


def merge_nested(current, updates):
    """Return a new dict with ``updates`` merged over ``current`` recursively."""
    merged = dict(current or {})
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_nested(merged[key], value)
        else:
            merged[key] = value
    return merged
