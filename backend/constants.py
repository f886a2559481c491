"""
Settings for the weighted k-NN classifier service.
Datasets are CSV files with a header row; the last column holds the class label.
"""

# Preprocessing markers carried by a Dataset (0 means nothing recorded yet)
PREPROCESSING_NONE = 0
PREPROCESSING_RAW = 1
PREPROCESSING_NORMALIZED = 2
PREPROCESSING_STANDARDIZED = 3

PREPROCESSING_NAMES = {
    'raw': PREPROCESSING_RAW,
    'normalized': PREPROCESSING_NORMALIZED,
    'standardized': PREPROCESSING_STANDARDIZED,
}

# Weight vector checked against the query's feature vector:
#   literal  -> every attribute weight, class attribute included
#   features -> weights of the numeric non-class attributes only
WEIGHT_MODE_LITERAL = 'literal'
WEIGHT_MODE_FEATURES = 'features'
WEIGHT_MODES = (WEIGHT_MODE_LITERAL, WEIGHT_MODE_FEATURES)

# Defaults used by the model wrapper and the API
DEFAULT_K = 3
DEFAULT_TRAIN_FRACTION = 0.8
DEFAULT_SEED = 1234
DEFAULT_WEIGHT_MODE = WEIGHT_MODE_FEATURES

# MLflow tracking
MLFLOW_TRACKING_URI = "http://127.0.0.1:5102"
EXPERIMENT_NAME = "knn_evaluation"
