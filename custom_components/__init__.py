"""Package marker for local testing.

Lets tests import the integration as `custom_components.ubisys_setup`. Home
Assistant itself only loads the `ubisys_setup` directory.
"""
