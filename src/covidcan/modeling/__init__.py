"""
covidcan.modeling — scikit-learn models over the cases/deaths table.

  forest — random-forest regression of cumulative cases on elapsed days
"""
