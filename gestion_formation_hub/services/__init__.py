"""
Services métier de Gestion Formation Hub
"""
