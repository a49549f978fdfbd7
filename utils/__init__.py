"""Date, time and logging helpers"""
