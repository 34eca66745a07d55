"""Read-side rollups of incomes and expenses."""
