import matplotlib

# charts are written to files only
matplotlib.use("Agg")
