"""
campusweek: resolves a recurring weekly university timetable into dated
course occurrences for day, week and month views.
"""
