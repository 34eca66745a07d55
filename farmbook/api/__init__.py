from . import admin, auth, dashboard, expenses, feedback, incomes, settings, users

BLUEPRINTS = (
    auth.bp,
    expenses.bp,
    incomes.bp,
    dashboard.bp,
    users.bp,
    feedback.bp,
    settings.bp,
    admin.bp,
)
