"""
Firewall bouncer - enforce ban decisions as live firewall state.

Materializes externally decided bans in pf tables (and, through the
same backend contract, other firewall engines).
"""

__version__ = "1.0.0"
__author__ = "Firewall Bouncer Team"
