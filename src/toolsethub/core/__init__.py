"""Core building blocks shared by every toolsethub subsystem."""
