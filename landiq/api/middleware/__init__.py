"""Request authentication and role gating"""
