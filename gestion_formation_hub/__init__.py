"""
Gestion Formation Hub : back-office d'un organisme de formation
"""
