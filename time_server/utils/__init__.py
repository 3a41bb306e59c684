"""Utility modules for the Time Tool Server"""
