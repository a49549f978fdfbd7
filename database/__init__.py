"""Local key/value persistence and one-time data migrations"""
