"""Generation pipeline: outline, content, repair and image stages"""
