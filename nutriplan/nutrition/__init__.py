"""Pure nutrition calculations: targets, goals, hydration and weekly totals."""
