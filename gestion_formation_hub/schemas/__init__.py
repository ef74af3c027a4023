"""
Schémas Pydantic de l'API
"""
