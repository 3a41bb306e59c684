"""Service layer for the Time Tool Server"""
