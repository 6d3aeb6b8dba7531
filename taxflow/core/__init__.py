"""
Domain core: models, validation, jurisdiction lookup and tax math.
"""
