"""
timetable_ics: turn timetable exports into iCalendar files.
"""
