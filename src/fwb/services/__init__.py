"""Service layer for the firewall bouncer.

Services drive backends on behalf of the CLI.
"""
