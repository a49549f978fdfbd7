"""StudySync domain logic: records, progression, streaks, challenges, tasks, subjects and the focus timer"""
