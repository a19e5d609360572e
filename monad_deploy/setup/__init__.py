"""
Deployment pipeline, artifact store and the command line entry point.
"""
