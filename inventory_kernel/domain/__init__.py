"""Pure domain values for the inventory kernel (clock, DTOs)."""
