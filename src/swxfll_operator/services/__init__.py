"""Service clients used by the Swxfll Operator."""
