"""Outbound vendor clients (Jira, Pipedrive, hosted analytics events)"""
