# Domain objects
