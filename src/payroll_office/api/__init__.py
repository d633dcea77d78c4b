"""HTTP boundary for the payroll office core."""
