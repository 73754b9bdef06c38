"""Admin domain - appointment management, opening status and blacklist"""
