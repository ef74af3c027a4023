"""
Noyau applicatif : configuration, base de données, sécurité, middlewares
"""
