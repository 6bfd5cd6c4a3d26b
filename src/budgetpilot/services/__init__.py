"""Service layer: classifier, payoff planning, transfers and plan lifecycle."""
