"""StudySync HTTP dashboard"""
