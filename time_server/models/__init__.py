"""Data models for the Time Tool Server"""
