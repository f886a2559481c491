from flask import Flask, request
from flask_restx import Api, Resource, fields
from werkzeug.datastructures import FileStorage
import os
import tempfile
from datetime import datetime

import pandas as pd
import mlflow
from mlflow.exceptions import MlflowException

from KNNModel import KNNModel
from constants import (
    DEFAULT_K,
    DEFAULT_SEED,
    DEFAULT_TRAIN_FRACTION,
    DEFAULT_WEIGHT_MODE,
    EXPERIMENT_NAME,
    MLFLOW_TRACKING_URI,
    PREPROCESSING_NAMES,
    WEIGHT_MODES,
)
from utils import parse_weights

# Configure MLflow tracking
mlflow.set_tracking_uri(os.environ.get("MLFLOW_TRACKING_URI", MLFLOW_TRACKING_URI))
if not mlflow.get_experiment_by_name(EXPERIMENT_NAME):
    mlflow.create_experiment(EXPERIMENT_NAME)
mlflow.set_experiment(EXPERIMENT_NAME)

app = Flask(__name__)
api = Api(app, version='1.0', title='Weighted k-NN API Documentation')

# Model evaluated by the last successful /model/train call
obj_knnmodel = None

predict_model = api.model(
    'PredictModel',
    {
        'inference_row': fields.List(
            fields.Raw,
            required=True,
            description="Feature values in the dataset's attribute order, without the class"
        )
    }
)

file_upload = api.parser()
file_upload.add_argument(
    'file',
    location='files',
    type=FileStorage,
    required=True,
    help='CSV file with a header row; the last column holds the class label'
)
file_upload.add_argument('k', location='form', type=int, default=DEFAULT_K)
file_upload.add_argument('train_fraction', location='form', type=float, default=DEFAULT_TRAIN_FRACTION)
file_upload.add_argument('seed', location='form', type=int, default=DEFAULT_SEED,
                         help='Seed for random sampling; -1 selects a sequential cut')
file_upload.add_argument('preprocessing', location='form', type=str, default='raw',
                         choices=list(PREPROCESSING_NAMES))
file_upload.add_argument('weight_mode', location='form', type=str, default=DEFAULT_WEIGHT_MODE,
                         choices=list(WEIGHT_MODES))
file_upload.add_argument('weights', location='form', type=str,
                         help='Comma separated weights in [0, 1], one per attribute including the class')

ns = api.namespace('model', description='Model operations')


@ns.route('/train')
class Train(Resource):
    @ns.expect(file_upload)
    def post(self):
        """Partition an uploaded dataset, evaluate k-NN on it and log the results to MLflow."""
        global obj_knnmodel
        args = file_upload.parse_args()
        uploaded_file = args['file']

        if os.path.splitext(uploaded_file.filename)[1].lower() != '.csv':
            return {'error': 'Invalid file type'}, 400

        try:
            knn_model = KNNModel(
                k=args['k'],
                weight_mode=args['weight_mode'],
                preprocessing=PREPROCESSING_NAMES[args['preprocessing']],
            )
            raw_df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
            weights = parse_weights(args['weights']) if args['weights'] else None
            knn_model.preprocessing_pipeline(raw_df, weights=weights)
            seed = args['seed'] if args['seed'] is not None and args['seed'] >= 0 else None
            knn_model.split(args['train_fraction'], seed=seed)
        except (ValueError, TypeError) as exc:
            return {'error': str(exc)}, 400

        try:
            run_name = f"evaluate_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            with mlflow.start_run(run_name=run_name) as run:
                report, confusion = knn_model.evaluate()

                with tempfile.TemporaryDirectory() as folder:
                    knn_model.save_partition(folder)
                    mlflow.log_artifacts(folder, artifact_path="datasets")

            obj_knnmodel = knn_model
            return {
                'message': 'Model Evaluated Successfully',
                'report': report.to_dict(),
                'confusion_matrix': confusion.to_dict(),
                'mlflow_run_id': run.info.run_id,
            }, 200

        except MlflowException as mfe:
            return {'message': 'MLflow Error', 'error': str(mfe)}, 500
        except Exception as exc:
            return {'message': 'Internal Server Error', 'error': str(exc)}, 500


@ns.route('/predict')
class Predict(Resource):
    @api.expect(predict_model)
    def post(self):
        """Classify one row against the training split of the last evaluated model."""
        try:
            data = request.get_json()
            if not data or 'inference_row' not in data:
                return {'error': 'No inference_row found'}, 400

            if obj_knnmodel is None:
                return {'error': "No model is loaded yet. Train a model first."}, 400

            infer_array = data['inference_row']
            try:
                prediction = obj_knnmodel.predict(infer_array)
            except ValueError as exc:
                return {'error': str(exc)}, 400

            if prediction is None:
                return {'message': 'No classification possible', 'prediction': None}, 200
            return {'message': 'Inference Successful', 'prediction': prediction}, 200
        except Exception as exc:
            return {'message': 'Internal Server Error', 'error': str(exc)}, 500


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=8080, debug=False)
