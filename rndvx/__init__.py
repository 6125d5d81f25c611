"""
rndvx - group meeting coordination API.
"""
