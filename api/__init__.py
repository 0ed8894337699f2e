"""
Yeoyeo listings API package.
"""
